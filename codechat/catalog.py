from dataclasses import dataclass

from codechat.errors import UnknownLanguage


@dataclass(frozen=True)
class LanguageOption:
    id: str
    display_name: str
    default_code: str


LANGUAGE_OPTIONS = (
    LanguageOption("javascript", "JavaScript", "console.log('Hello World');"),
    LanguageOption("typescript", "TypeScript", "console.log('Hello TypeScript');"),
    LanguageOption("python", "Python", "print('Hello World')"),
    LanguageOption(
        "java",
        "Java",
        "public class Main {\n"
        "  public static void main(String[] args) {\n"
        "    System.out.println(\"Hello World\");\n"
        "  }\n"
        "}",
    ),
    LanguageOption(
        "cpp",
        "C++",
        "#include <iostream>\n"
        "int main() {\n"
        "  std::cout << \"Hello World\";\n"
        "  return 0;\n"
        "}",
    ),
    LanguageOption(
        "c",
        "C",
        "#include <stdio.h>\n"
        "int main() {\n"
        "  printf(\"Hello World\");\n"
        "  return 0;\n"
        "}",
    ),
    LanguageOption(
        "csharp",
        "C#",
        "using System;\n"
        "class Program {\n"
        "  static void Main() {\n"
        "    Console.WriteLine(\"Hello World\");\n"
        "  }\n"
        "}",
    ),
    LanguageOption(
        "go",
        "Go",
        "package main\n"
        "import \"fmt\"\n"
        "func main() {\n"
        "  fmt.Println(\"Hello World\")\n"
        "}",
    ),
    LanguageOption("swift", "Swift", "print(\"Hello World\")"),
    LanguageOption(
        "html",
        "HTML",
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<body>\n"
        "  <h1>Hello World</h1>\n"
        "</body>\n"
        "</html>",
    ),
    LanguageOption(
        "css",
        "CSS",
        "body {\n"
        "  background: #1a1a2e;\n"
        "  color: white;\n"
        "}",
    ),
)

DEFAULT_LANGUAGE_ID = LANGUAGE_OPTIONS[0].id

_BY_ID = {option.id: option for option in LANGUAGE_OPTIONS}


def list_languages():
    """Return every supported language in display order"""
    return LANGUAGE_OPTIONS


def lookup(language_id):
    """Resolve a language id, raising UnknownLanguage when it is not supported"""
    option = _BY_ID.get(language_id) if isinstance(language_id, str) else None
    if option is None:
        raise UnknownLanguage(language_id)
    return option


def is_supported(language_id):
    return isinstance(language_id, str) and language_id in _BY_ID

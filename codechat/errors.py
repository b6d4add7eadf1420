class WorkspaceError(Exception):
    """Base class for recoverable errors raised by a workspace intent"""

    kind = "workspace_error"


class UnknownLanguage(WorkspaceError):
    kind = "unknown_language"

    def __init__(self, language_id):
        super().__init__(f"Unknown language: {language_id}")
        self.language_id = language_id


class AlreadyRunning(WorkspaceError):
    kind = "already_running"

    def __init__(self, request_id=None):
        super().__init__("An execution is already running for this session")
        self.request_id = request_id


class EmptyMessage(WorkspaceError):
    kind = "empty_message"

    def __init__(self):
        super().__init__("Message text must not be empty")


class InvalidCode(WorkspaceError):
    kind = "invalid_code"

    def __init__(self, type_name):
        super().__init__(f"Code must be text, got {type_name}")
        self.type_name = type_name

from flask_restx import Namespace, Resource, fields
from codechat import catalog, get_workspace
from codechat.services.workspace import language_to_dict

# Create namespaces
ns = Namespace('workspace', description='Workspace state and theme')
languages_ns = Namespace('languages', description='Supported languages')

notice_model = ns.model('Notice', {
    'title': fields.String(description='Notice title'),
    'description': fields.String(description='Notice text'),
    'level': fields.String(description='info or error')
})

theme_model = ns.model('Theme', {
    'theme': fields.String(description='Current theme', enum=['dark', 'light'])
})

language_model = languages_ns.model('Language', {
    'id': fields.String(description='Language id'),
    'display_name': fields.String(description='Display name'),
    'default_code': fields.String(description='Code a fresh buffer starts with')
})


@ns.route('')
class WorkspaceState(Resource):
    @ns.doc('get_workspace')
    def get(self):
        """Everything the shell renders: theme, editor, chat and notices"""
        return get_workspace().snapshot(), 200


@ns.route('/theme/toggle')
class ThemeToggle(Resource):
    @ns.doc('toggle_theme')
    @ns.marshal_with(theme_model)
    def post(self):
        """Switch between dark and light"""
        return {'theme': get_workspace().toggle_theme()}, 200


@languages_ns.route('')
class LanguageList(Resource):
    @languages_ns.doc('list_languages')
    @languages_ns.marshal_list_with(language_model)
    def get(self):
        """Languages the editor can switch to"""
        return [language_to_dict(option) for option in catalog.list_languages()], 200

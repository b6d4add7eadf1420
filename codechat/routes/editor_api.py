from flask_restx import Namespace, Resource, fields
from codechat import get_workspace
from codechat.errors import AlreadyRunning, InvalidCode, UnknownLanguage
from codechat.services.workspace import editor_to_dict

# Create namespace
ns = Namespace('editor', description='Code editor operations')

# Define models for Swagger documentation
result_model = ns.model('ExecutionResult', {
    'request_id': fields.String(description='Run request ID'),
    'status': fields.String(description='Execution status', enum=['SUCCESS', 'FAILURE', 'TIMEOUT']),
    'output_text': fields.String(description='Console output'),
    'language_id': fields.String(description='Language the code ran as'),
    'completed_at': fields.String(description='Completion timestamp'),
    'error_kind': fields.String(description='compile_error, runtime_error, timeout or unsupported_language'),
    'execution_time_ms': fields.Integer(description='Execution time in milliseconds')
})

editor_model = ns.model('Editor', {
    'language_id': fields.String(description='Selected language'),
    'display_name': fields.String(description='Language display name'),
    'buffer': fields.String(description='Current code'),
    'is_running': fields.Boolean(description='Whether a run is in flight'),
    'output': fields.String(description='Console text to display'),
    'result': fields.Nested(result_model, allow_null=True),
    'generation': fields.Integer(description='Bumped on language change and reset')
})

language_update_model = ns.model('LanguageUpdate', {
    'language': fields.String(required=True, description='Language id, e.g. python')
})

code_update_model = ns.model('CodeUpdate', {
    'code': fields.String(required=True, description='New buffer contents')
})

run_response_model = ns.model('RunResponse', {
    'request_id': fields.String(description='Run request ID'),
    'language_id': fields.String(description='Language submitted'),
    'submitted_at': fields.String(description='Submission timestamp')
})

error_model = ns.model('Error', {
    'message': fields.String(description='Error message')
})


@ns.route('')
class Editor(Resource):
    @ns.doc('get_editor')
    @ns.marshal_with(editor_model)
    def get(self):
        """Current editor state"""
        workspace = get_workspace()
        with workspace.lock:
            return editor_to_dict(workspace.editor.snapshot()), 200


@ns.route('/language')
class EditorLanguage(Resource):
    @ns.doc('select_language')
    @ns.expect(language_update_model, validate=True)
    @ns.marshal_with(editor_model)
    @ns.response(400, 'Unknown language', error_model)
    def put(self):
        """Switch the editor to another language"""
        data = ns.payload or {}
        workspace = get_workspace()

        try:
            workspace.select_language(data.get('language'))
        except UnknownLanguage as e:
            ns.abort(400, str(e))

        return editor_to_dict(workspace.editor.snapshot()), 200


@ns.route('/code')
class EditorCode(Resource):
    @ns.doc('edit_buffer')
    @ns.expect(code_update_model, validate=True)
    @ns.marshal_with(editor_model)
    @ns.response(400, 'Code is not text', error_model)
    def put(self):
        """Autosave the current buffer"""
        data = ns.payload or {}
        workspace = get_workspace()
        try:
            workspace.edit_buffer(data.get('code'))
        except InvalidCode as e:
            ns.abort(400, str(e))

        return editor_to_dict(workspace.editor.snapshot()), 200


@ns.route('/reset')
class EditorReset(Resource):
    @ns.doc('reset_editor')
    @ns.marshal_with(editor_model)
    def post(self):
        """Restore the default code of the selected language"""
        workspace = get_workspace()
        workspace.reset()
        return editor_to_dict(workspace.editor.snapshot()), 200


@ns.route('/run')
class EditorRun(Resource):
    @ns.doc('run_code')
    @ns.marshal_with(run_response_model, code=202)
    @ns.response(202, 'Execution queued successfully')
    @ns.response(409, 'Already running', error_model)
    def post(self):
        """Execute the current code asynchronously

        Returns immediately; poll the editor or workspace state for the result
        """
        try:
            request = get_workspace().run()
        except AlreadyRunning as e:
            ns.abort(409, str(e))

        return {
            'request_id': request.id,
            'language_id': request.language_id,
            'submitted_at': request.submitted_at.isoformat()
        }, 202

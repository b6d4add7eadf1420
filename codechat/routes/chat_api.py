from flask_restx import Namespace, Resource, fields
from codechat import get_workspace
from codechat.errors import EmptyMessage

# Create namespace
ns = Namespace('chat', description='Chat panel operations')

message_model = ns.model('ChatMessage', {
    'id': fields.Integer(description='Message ID, increasing in send order'),
    'text': fields.String(description='Message text'),
    'sender_id': fields.String(description='Sender'),
    'sent_at': fields.String(description='Send timestamp'),
    'direction': fields.String(description='Message direction', enum=['outgoing', 'incoming'])
})

message_list_model = ns.model('ChatHistory', {
    'messages': fields.List(fields.Nested(message_model)),
    'online_count': fields.Integer(description='Users online'),
    'pending_replies': fields.Integer(description='Replies not yet delivered')
})

message_create_model = ns.model('ChatMessageCreate', {
    'text': fields.String(required=True, description='Message text')
})

presence_model = ns.model('Presence', {
    'online_count': fields.Integer(description='Users online')
})

error_model = ns.model('Error', {
    'message': fields.String(description='Error message')
})


@ns.route('/messages')
class ChatMessages(Resource):
    @ns.doc('get_history')
    @ns.marshal_with(message_list_model)
    def get(self):
        """Chat history in send/receive order"""
        workspace = get_workspace()
        with workspace.lock:
            chat = workspace.chat
            return {
                'messages': [message.to_dict() for message in chat.history()],
                'online_count': chat.presence(),
                'pending_replies': len(chat.pending_auto_reply_for)
            }, 200

    @ns.doc('send_message')
    @ns.expect(message_create_model, validate=True)
    @ns.marshal_with(message_model, code=201)
    @ns.response(400, 'Empty message', error_model)
    def post(self):
        """Send a message; the peer answers shortly after"""
        data = ns.payload or {}

        try:
            message = get_workspace().send_message(data.get('text'))
        except EmptyMessage as e:
            ns.abort(400, str(e))

        return message.to_dict(), 201


@ns.route('/presence')
class ChatPresence(Resource):
    @ns.doc('get_presence')
    @ns.marshal_with(presence_model)
    def get(self):
        """Number of users online"""
        workspace = get_workspace()
        with workspace.lock:
            return {'online_count': workspace.chat.presence()}, 200

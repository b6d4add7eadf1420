from flask_restx import Api


def create_api():
    """Build the API with Swagger documentation"""
    return Api(
        version='1.0',
        title='CodeChat Workspace API',
        description='Editor and chat sessions of a single-user coding workspace',
        doc='/docs',
        prefix='/api/v1'
    )

import logging
from datetime import datetime

from bson import ObjectId
from flask import Flask
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
from pymongo import MongoClient

from .config import Config
from .errors import register_error_handlers
from .security import TokenVerifier, decode_token


class MongoJSONProvider(DefaultJSONProvider):
    """JSON provider that understands ObjectId and datetime values."""

    @staticmethod
    def default(o):
        if isinstance(o, ObjectId):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def create_app(config_override=None):
    app = Flask(__name__)
    app.json = MongoJSONProvider(app)

    cfg = Config()
    app.config.update(cfg.to_flask_dict())
    if config_override:
        app.config.update(config_override)
    app.config['IS_PRODUCTION'] = app.config['ENVIRONMENT'] == 'production'

    app.logger.setLevel(getattr(logging, app.config['LOG_LEVEL'], logging.INFO))

    CORS(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)

    client = app.config.get('MONGO_CLIENT') or MongoClient(app.config['MONGODB_URI'])
    db = client[app.config['DB_NAME']]
    app.db = db

    app.extensions['token_verifier'] = TokenVerifier(
        decode_token,
        app.config['ACCESS_TOKEN_SECRET'],
        cookie_name=app.config['TOKEN_COOKIE_NAME'],
    )

    register_error_handlers(app)

    # Register blueprints
    from .views import views
    from .auth import auth
    app.register_blueprint(views, url_prefix='/')
    app.register_blueprint(auth, url_prefix='/')

    return app

from flask import Flask, jsonify
from flask_smorest import Api
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_mail import Mail
from flask_cors import CORS
from datetime import datetime
from config import Config


db = SQLAlchemy()
migrate = Migrate()
mail = Mail()
jwt = JWTManager()


def create_app(config_class=Config):

    app = Flask(__name__)
    app.config.from_object(config_class)

    CORS(app, origins=app.config.get("FRONTEND_URL") or "*",
         supports_credentials=True)

    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)
    jwt.init_app(app)

    from .celery_config import celery_init_app
    celery_init_app(app)

    from .controllers.user import blp as UserBlp
    from .controllers.catalog import blp as CatalogBlp
    from .controllers.order import blp as OrderBlp
    from .controllers.archive import blp as ArchiveBlp
    from .controllers.reservation import blp as ReservationBlp

    api = Api(app)
    api.register_blueprint(UserBlp)
    api.register_blueprint(CatalogBlp)
    api.register_blueprint(OrderBlp)
    api.register_blueprint(ArchiveBlp)
    api.register_blueprint(ReservationBlp)

    # Registered after Api(app) so these handlers replace flask-smorest's
    from .middleware import init_middleware
    init_middleware(app)

    from .commands import register_commands
    register_commands(app)

    @app.route('/health')
    def health():
        return jsonify({"status": "ok"})

    @app.route('/')
    def home():
        return jsonify({
            "status": "healthy",
            "message": "DE BLISS Backend API is running",
            "timestamp": datetime.utcnow().isoformat(),
        })

    with app.app_context():
        db.create_all()

    if app.config.get("SCHEDULER_ENABLED"):
        from .scheduler import start_scheduler
        start_scheduler(app)

    return app

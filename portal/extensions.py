# portal/extensions.py
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_cors import CORS
from flask_mail import Mail

# Keep extension instances in one place to avoid circular imports
db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
cors = CORS()
mail = Mail()


def init_mail(app):
    """
    Flask-Mail pro potvrzení a stavy objednávek. SSL má přednost před TLS
    (seznam.cz jede na 465), odesílatel bez nastavení = MAIL_USERNAME.
    """
    cfg = app.config

    if cfg.get("MAIL_USE_SSL") and cfg.get("MAIL_USE_TLS"):
        cfg["MAIL_USE_TLS"] = False
        app.logger.info("MAIL_USE_SSL i MAIL_USE_TLS zapnuto -> TLS vypnuto.")

    if not cfg.get("MAIL_DEFAULT_SENDER"):
        cfg["MAIL_DEFAULT_SENDER"] = cfg.get("MAIL_USERNAME")
    if not cfg.get("MAIL_DEFAULT_SENDER") and not cfg.get("MAIL_SUPPRESS_SEND"):
        app.logger.warning("MAIL_DEFAULT_SENDER ani MAIL_USERNAME nejsou nastaveny, e-maily neodejdou.")

    mail.init_app(app)

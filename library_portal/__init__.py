from flask import Flask, jsonify
from library_portal.config import Config
from library_portal.extensions import db, migrate


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    # 1) DB init, then the key/value table behind the persisted state
    db.init_app(app)
    from library_portal.models.storage_entry import StorageEntry  # noqa: F401
    with app.app_context():
        db.create_all()

    migrate.init_app(app, db)

    # 2) Notification context (message log + dispatcher + queue)
    from library_portal.services.notification_service import NotificationCenter
    NotificationCenter().init_app(app)

    # 3) Barcode scanner adapter for this kiosk
    from library_portal.services.barcode_scanner import init_scanner
    init_scanner(app)

    # 4) Blueprints
    from library_portal.controllers.auth_controller import auth_bp
    from library_portal.controllers.book_controller import book_bp
    from library_portal.controllers.borrow_controller import borrow_bp
    from library_portal.controllers.notification_controller import notif_bp
    from library_portal.controllers.scanner_controller import scanner_bp
    from library_portal.controllers.sms_controller import sms_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(book_bp, url_prefix="/books")
    app.register_blueprint(borrow_bp, url_prefix="/borrow")
    app.register_blueprint(notif_bp, url_prefix="/notifications")
    app.register_blueprint(scanner_bp, url_prefix="/scanner")
    app.register_blueprint(sms_bp, url_prefix="/api")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    # Scheduler (overdue check)
    from library_portal.tasks.scheduler import start_scheduler
    start_scheduler(app)

    return app

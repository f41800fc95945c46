import click
from flask import Flask

from linkgroups.api import api_bp
from linkgroups.config import Config
from linkgroups.extensions import db, migrate
from linkgroups.jobs.scheduler import start_scheduler
from linkgroups.services.cascade import repair_orphans


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    migrate.init_app(app, db)

    app.register_blueprint(api_bp)

    @app.cli.command("init-db")
    def init_db_command():
        db.create_all()
        print("Initialized linkgroups database.")

    @app.cli.command("repair-orphans")
    @click.option("--user-id", type=int, default=None)
    def repair_orphans_command(user_id):
        repaired = repair_orphans(owner_id=user_id)
        print(f"Moved {repaired} orphaned groups to the root.")

    with app.app_context():
        db.create_all()

    start_scheduler(app)
    return app

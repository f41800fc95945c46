import os

from apscheduler.schedulers.background import BackgroundScheduler

from linkgroups.services.cascade import repair_orphans


scheduler = BackgroundScheduler()


def run_orphan_sweep(app):
    with app.app_context():
        repaired = repair_orphans()
        if repaired:
            app.logger.info("Orphan sweep moved %s groups to the root", repaired)


def start_scheduler(app):
    if not app.config.get("SCHEDULER_ENABLED", True):
        return
    if os.environ.get("WERKZEUG_RUN_MAIN") == "false":
        return

    interval_minutes = app.config["ORPHAN_SWEEP_INTERVAL_MINUTES"]
    if not scheduler.get_jobs():
        scheduler.add_job(
            run_orphan_sweep,
            "interval",
            minutes=interval_minutes,
            kwargs={"app": app},
            id="orphan_sweep",
            replace_existing=True,
        )
        scheduler.start()

from celery import Celery, Task


def celery_init_app(app):
    """Bind a Celery app to the Flask app so tasks run inside its context."""

    class ContextTask(Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery = Celery(app.import_name, task_cls=ContextTask)
    celery.conf.update(app.config["CELERY_CONFIG"])
    celery.conf.update(
        accept_content=['json'],
        result_expires=3600
    )
    celery.set_default()
    app.extensions["celery"] = celery
    return celery

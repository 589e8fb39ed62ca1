"""Management entry point: database, migration and maintenance commands.

    python manage.py init-db
    python manage.py seed-db
    python manage.py db upgrade
    python manage.py recompute-statuses
"""

import os

from dotenv import load_dotenv
from flask.cli import FlaskGroup

load_dotenv()

from countylock import create_app


def _create_app():
    return create_app(os.getenv("FLASK_CONFIG", "development"))


cli = FlaskGroup(create_app=_create_app)


if __name__ == "__main__":
    cli()

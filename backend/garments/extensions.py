# Overview: Unbound extension singletons; create_app() binds them and builds the repository bundle on db.session.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate(compare_type=True)

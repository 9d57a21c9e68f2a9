from flask import Flask
from flask_cors import CORS

from movie_catalog.api_actors.actors import bp as actors_bp
from movie_catalog.api_admin.admin import bp as admin_bp
from movie_catalog.api_movies.movies import bp as movies_bp
from movie_catalog.api_reviews.reviews import bp as reviews_bp
from movie_catalog.api_users.users import bp as users_bp
from movie_catalog.config import PORT
from movie_catalog.db import create_database
from movie_catalog.errors import register_error_handlers
from movie_catalog.logger import logger
from movie_catalog.media_store import MediaStore


def create_app(db=None, media_store=None):
    """
    Build the Flask application.

    Args:
        db (Database | None): Database to serve; opened from ``MONGO_URI`` when omitted.
        media_store (MediaStore | None): Media host client; configured from ``CLOUD_*`` when omitted.

    Returns:
        Flask: Configured application.
    """
    app = Flask(__name__)
    app.json.sort_keys = False
    CORS(app)

    app.extensions["mongo_db"] = db if db is not None else create_database()
    app.extensions["media_store"] = media_store if media_store is not None else MediaStore()

    app.register_blueprint(movies_bp)
    app.register_blueprint(actors_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(users_bp)
    register_error_handlers(app)
    return app


if __name__ == "__main__":
    logger.info("Server is running on port %s", PORT)
    create_app().run(host="0.0.0.0", port=PORT, debug=True)

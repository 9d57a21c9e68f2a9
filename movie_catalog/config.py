import os


MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "movie_catalog")

MOVIES_COLLECTION = os.environ.get("MOVIES_COLLECTION", "movies")
PEOPLE_COLLECTION = os.environ.get("PEOPLE_COLLECTION", "people")
REVIEWS_COLLECTION = os.environ.get("REVIEWS_COLLECTION", "reviews")
USERS_COLLECTION = os.environ.get("USERS_COLLECTION", "users")
ORPHANED_ASSETS_COLLECTION = os.environ.get("ORPHANED_ASSETS_COLLECTION", "orphaned_assets")

CLOUD_NAME = os.environ.get("CLOUD_NAME")
CLOUD_API_KEY = os.environ.get("CLOUD_API_KEY")
CLOUD_API_SECRET = os.environ.get("CLOUD_API_SECRET")

PORT = int(os.environ.get("PORT", 8000))
DEBUG = bool(os.environ.get("DEBUG"))

DEFAULT_PAGE_SIZE = int(os.environ.get("DEFAULT_PAGE_SIZE", 10))
MAX_PAGE_SIZE = int(os.environ.get("MAX_PAGE_SIZE", 100))
LATEST_UPLOADS_LIMIT = int(os.environ.get("LATEST_UPLOADS_LIMIT", 5))
LATEST_ACTORS_LIMIT = int(os.environ.get("LATEST_ACTORS_LIMIT", 12))
RELATED_MOVIES_LIMIT = int(os.environ.get("RELATED_MOVIES_LIMIT", 5))
TOP_RATED_LIMIT = int(os.environ.get("TOP_RATED_LIMIT", 5))

POSTER_WIDTH = 1280
POSTER_HEIGHT = 720
RESPONSIVE_MAX_WIDTH = 640
RESPONSIVE_MAX_IMAGES = 3
AVATAR_SIZE = 500

MOVIE_STATUSES = {"public", "private"}
DEFAULT_MOVIE_TYPE = "Film"
GENRES = [
    "Action",
    "Adventure",
    "Animation",
    "Biography",
    "Comedy",
    "Crime",
    "Documentary",
    "Drama",
    "Family",
    "Fantasy",
    "Film-Noir",
    "History",
    "Horror",
    "Music",
    "Musical",
    "Mystery",
    "Romance",
    "Sci-Fi",
    "Short",
    "Sport",
    "Thriller",
    "War",
    "Western",
]
GENDERS = {"male", "female", "other"}
MIN_RATING = 1
MAX_RATING = 10

from mvcmovie.controllers.base import Controller, action
from mvcmovie.core.authorization import ADMIN_ONLY_POLICY
from mvcmovie.models.movie import Movie
from mvcmovie.schemas.movie import MovieIn


MAX_MOVIE_ID = 2**31 - 1  # IntField primary key range


def _movie_id(raw: str | None) -> int | None:
    try:
        value = int(raw) if raw is not None else None
    except ValueError:
        return None
    if value is None or not 1 <= value <= MAX_MOVIE_ID:
        return None
    return value


class MoviesController(Controller):
    @action("Index")
    async def index(self, id=None):
        """
        List movies, optionally filtered by ``searchString`` (title contains)
        and ``movieGenre`` (exact genre). Also returns every known genre.
        """
        params = self.request.query_params
        query = Movie.all()
        if params.get("searchString"):
            query = query.filter(title__icontains=params["searchString"])
        if params.get("movieGenre"):
            query = query.filter(genre=params["movieGenre"])
        movies = await query
        genres = await Movie.all().distinct().order_by("genre").values_list("genre", flat=True)
        return self.ok({"movies": [m.to_dict() for m in movies], "genres": list(genres)})

    @action("Details")
    async def details(self, id=None):
        movie_id = _movie_id(id)
        movie = await Movie.get_or_none(id=movie_id) if movie_id is not None else None
        if movie is None:
            return self.fail("MOVIE_NOT_FOUND", "Movie not found", status_code=404)
        return self.ok(movie.to_dict())

    @action("Create", methods=["POST"], policy=ADMIN_ONLY_POLICY)
    async def create(self, id=None):
        body = await self.bind(MovieIn)
        movie = await Movie.create(
            title=body.title,
            release_date=body.releaseDate,
            genre=body.genre,
            price=body.price,
            rating=body.rating,
        )
        return self.ok(movie.to_dict(), status_code=201)

    @action("Delete", methods=["POST"], policy=ADMIN_ONLY_POLICY)
    async def delete(self, id=None):
        movie_id = _movie_id(id)
        deleted = await Movie.filter(id=movie_id).delete() if movie_id is not None else 0
        if not deleted:
            return self.fail("MOVIE_NOT_FOUND", "Movie not found", status_code=404)
        return self.ok({"deleted": movie_id})

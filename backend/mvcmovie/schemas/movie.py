import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field


class MovieIn(BaseModel):
    title: str = Field(min_length=3, max_length=60)
    releaseDate: dt.date
    genre: str = Field(min_length=1, max_length=30, pattern=r"^[A-Z]+[a-zA-Z\s]*$")
    price: Decimal = Field(ge=1, le=100, max_digits=18, decimal_places=2)
    rating: str | None = Field(default=None, max_length=5, pattern=r"^[A-Z]+[a-zA-Z0-9'\-\s]*$")

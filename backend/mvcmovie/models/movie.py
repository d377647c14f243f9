from tortoise import fields, models


class Movie(models.Model):
    id = fields.IntField(pk=True)
    title = fields.CharField(max_length=60)
    release_date = fields.DateField()
    genre = fields.CharField(max_length=30)
    price = fields.DecimalField(max_digits=18, decimal_places=2)
    rating = fields.CharField(max_length=5, null=True)

    class Meta:
        table = "movies"
        ordering = ["title"]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "releaseDate": self.release_date.isoformat(),
            "genre": self.genre,
            "price": str(self.price),
            "rating": self.rating,
        }

import uuid

from mvcmovie.controllers.base import Controller, action


class HomeController(Controller):
    @action("Index")
    async def index(self, id=None):
        return self.ok({"title": "Home Page"})

    @action("About")
    async def about(self, id=None):
        return self.ok({"title": "About", "message": "Your application description page."})

    @action("Contact")
    async def contact(self, id=None):
        return self.ok({"title": "Contact", "message": "Your contact page."})

    @action("Error")
    async def error(self, id=None):
        """Target of the exception handler stage; the stage sets status 500."""
        return self.fail(
            "INTERNAL_ERROR",
            "An error occurred while processing your request.",
            requestId=uuid.uuid4().hex,
            path=self.request.scope.get("original_path"),
        )

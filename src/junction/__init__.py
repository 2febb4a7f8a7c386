"""Junction — one routing layer for API, web, admin and ajax routes.

Declare routes once with their middleware and validation; a host adapter
feeds requests in and renders the ``Ok``/``ErrorResult`` that comes back.

Basic usage::

    from junction import App, Request

    app = App()

    app.get("users/{id:int}", show_user).name("users.show").middleware("auth")

    with app.group(prefix="admin", middleware=["auth", "capability:manage_options"]):
        app.post("users", "UserController@store").validate({"email": "required|email"})

    result = app.dispatch("api", "GET", "users/42", Request.build("GET", "/users/42"))

Validation on its own::

    from junction.validation import validate

    result = validate({"name": ""}, {"name": "required|min:3"})
    result.errors  # {"name": ["The name field is required.", ...]}
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "Caller",
    "ConfigurationError",
    "Controller",
    "ErrorKind",
    "ErrorResult",
    "FormRequest",
    "HTTPError",
    "JunctionError",
    "MethodNotAllowed",
    "Middleware",
    "NotFound",
    "Ok",
    "Request",
    "RequestContext",
    "RouteType",
    "RouterConfig",
    "UnresolvableUrl",
    "ValidationError",
    "Validator",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import junction`` fast while providing a clean top-level API.
    """
    if name == "App":
        from junction.app import App

        return App

    if name == "RouterConfig":
        from junction.config import RouterConfig

        return RouterConfig

    if name in ("Request", "RequestContext", "Caller"):
        from junction import request as _request

        return getattr(_request, name)

    if name in ("Ok", "ErrorResult", "ErrorKind"):
        from junction import results as _results

        return getattr(_results, name)

    if name == "RouteType":
        from junction.routing.route import RouteType

        return RouteType

    if name == "Middleware":
        from junction.middleware.protocol import Middleware

        return Middleware

    if name in ("Validator", "FormRequest"):
        from junction import validation as _validation

        return getattr(_validation, name)

    if name == "Controller":
        from junction.controller import Controller

        return Controller

    if name in (
        "ConfigurationError",
        "HTTPError",
        "JunctionError",
        "MethodNotAllowed",
        "NotFound",
        "UnresolvableUrl",
        "ValidationError",
    ):
        from junction import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)

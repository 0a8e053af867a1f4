import logging

from flask import Flask, g, jsonify

from examples.cognito_demo.app_config import auth, id_auth


def create_app() -> Flask:
    """
    Create the demo API protected by Cognito tokens.

    Returns:
        Flask: Configured Flask application instance
    """
    logging.basicConfig(level=logging.INFO)
    app = Flask(__name__)
    auth.init_app(app, prefetch=True)

    @app.get("/api/test-access")
    @auth.require()
    def test_access():
        return jsonify(
            {"status": "success", "sub": g.jwt["sub"], "authenticated": True}
        ), 200

    @app.get("/api/profile")
    @id_auth.require()
    def profile():
        return jsonify({"email": g.jwt.get("email"), "username": g.jwt.get("cognito:username")})

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify(
            {
                "status": "denied",
                "message": error.description,
                "authenticated": False,
            }
        ), 401

    return app


if __name__ == "__main__":
    create_app().run(port=5001)

# Routes package - registers all blueprints with the Flask app

def register_blueprints(app):
    """Register all route blueprints with the Flask app."""
    from .sstv import sstv_bp

    app.register_blueprint(sstv_bp)

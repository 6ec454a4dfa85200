from flask_cors import CORS

cors = CORS()  # origins come from app.config["CORS_ORIGINS"] in create_app()

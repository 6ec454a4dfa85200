# Entry point: `python app.py`, or `flask --app app run` / `gunicorn app:app`
from darajapay.app import create_app, main

app = create_app()

if __name__ == "__main__":
    main(app)

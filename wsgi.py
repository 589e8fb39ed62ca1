import os
from dotenv import load_dotenv

load_dotenv()

from countylock import create_app

config = os.getenv("FLASK_CONFIG", "production")

app = create_app(config)

# main.py

# Load .env sebelum settings dibaca
from dotenv import load_dotenv
load_dotenv(override=True)

from ba_digital import create_app

# Uvicorn memanggil factory ini (factory=True)
app = create_app

"""Seed the catalog and create the initial admin.

Usage:
    python seed.py products
    python seed.py admin
"""
import argparse
import asyncio
import logging

from auth import AuthService
from catalog import ProductCatalog
from config import Config, setup_logging
from database import Database

logger = logging.getLogger(__name__)

ADMIN_USER = "store_manager"
ADMIN_EMAIL = "admin@mystore.com"
ADMIN_PASS = "admin123"

INITIAL_PRODUCTS = [
    {"id": "P001", "name": "Stylish Headset", "image": "headset.jpg", "description": "High-fidelity sound with noise-canceling technology. Perfect for work and music.", "price": 59.99, "stock": 15},
    {"id": "P002", "name": "Ergonomic Mouse", "image": "mouse.jpg", "description": "Designed for comfort and precision. Reduces wrist strain for long work sessions.", "price": 24.50, "stock": 50},
    {"id": "P003", "name": "Portable Charger", "image": "charger.jpg", "description": "20000mAh power bank. Fast charging for all your devices on the go.", "price": 35.00, "stock": 0},
    {"id": "P004", "name": "4K Webcam Pro", "image": "webcam.jpg", "description": "Crystal-clear video for professional streaming and video calls.", "price": 89.00, "stock": 22},
    {"id": "P005", "name": "Noise-Cancelling Buds", "image": "buds.jpg", "description": "Ultra-compact earbuds with incredible battery life and sound.", "price": 129.99, "stock": 30},
    {"id": "P006", "name": "Mechanical Keyboard", "image": "keyboard.jpg", "description": "Tactile brown switches for a satisfying typing experience.", "price": 99.95, "stock": 12},
    {"id": "P007", "name": "Smart Fitness Watch", "image": "watch.jpg", "description": "Tracks steps, heart rate, and sleep. Stay motivated and healthy!", "price": 49.99, "stock": 45},
    {"id": "P008", "name": "Portable SSD 1TB", "image": "ssd.jpg", "description": "Lightning-fast storage for backups and large media files.", "price": 119.00, "stock": 8},
    {"id": "P009", "name": "Gaming Monitor 27\"", "image": "monitor.jpg", "description": "144Hz refresh rate, curved display for an immersive gaming experience.", "price": 299.99, "stock": 5},
    {"id": "P010", "name": "Mini Projector", "image": "projector.jpg", "description": "Pocket-sized projector for movies anywhere. Great for travel.", "price": 150.00, "stock": 18},
    {"id": "P011", "name": "Wireless Charging Pad", "image": "charging-pad.png", "description": "Charge your phone, watch, and earbuds simultaneously, clutter-free.", "price": 39.99, "stock": 60},
    {"id": "P012", "name": "Laptop Stand", "image": "laptop-stand.png", "description": "Ergonomic aluminum stand to improve airflow and posture.", "price": 29.00, "stock": 75},
    {"id": "P013", "name": "Mesh Wi-Fi System", "image": "mesh-wifi.jpg", "description": "Eliminate dead zones with seamless, whole-home wireless coverage.", "price": 199.99, "stock": 10},
    {"id": "P014", "name": "Portable Bluetooth Speaker", "image": "speaker.png", "description": "Rugged and waterproof with 24 hours of playtime. Perfect for outdoors.", "price": 79.50, "stock": 40},
    {"id": "P015", "name": "LED Desk Lamp", "image": "desk-lamp.jpg", "description": "Adjustable brightness and color temperature for any task.", "price": 45.00, "stock": 25},
    {"id": "P016", "name": "Stylus Pen Pro", "image": "stylus.png", "description": "High-precision tip for drawing and note-taking on tablets.", "price": 32.99, "stock": 90},
    {"id": "P017", "name": "Smart Plug Set (4-Pack)", "image": "smart-plug.png", "description": "Control your appliances from anywhere using a simple mobile app.", "price": 49.00, "stock": 0},
    {"id": "P018", "name": "VR Headset Starter Kit", "image": "vr-headset.png", "description": "Dive into immersive virtual reality experiences right from your home.", "price": 250.00, "stock": 3},
    {"id": "P019", "name": "Digital Drawing Tablet", "image": "drawing-tablet.png", "description": "Large active area and pressure sensitivity for digital artists.", "price": 149.99, "stock": 7},
    {"id": "P020", "name": "GPS Drone (Foldable)", "image": "drone.png", "description": "Easy-to-fly drone with 4K camera and automatic return-to-home feature.", "price": 399.00, "stock": 15},
]


async def seed_products(db: Database) -> int:
    return await ProductCatalog(db).seed(INITIAL_PRODUCTS)


async def create_initial_admin(db: Database) -> bool:
    auth = AuthService(db, Config.SECRET_KEY, Config.TOKEN_TTL_HOURS)
    return await auth.create_admin(ADMIN_USER, ADMIN_EMAIL, ADMIN_PASS)


async def main(command: str):
    db = Database.from_url()
    try:
        await db.ensure_indexes()
        if command == "products":
            count = await seed_products(db)
            logger.info(f"Successfully seeded {count} products")
        else:
            if await create_initial_admin(db):
                logger.info(f"Admin email: {ADMIN_EMAIL}")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("command", choices=["products", "admin"])
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.command))

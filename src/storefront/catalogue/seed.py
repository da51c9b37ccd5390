"""Default catalogue for a fresh store.

Ratings and review counts carry the existing review history of each product
so the running mean continues from them. Stock starts at ``DEFAULT_STOCK``.
"""

import json

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_STOCK = 25

DEFAULT_PRODUCTS = [
    {
        "name": "Premium Wireless Headphones",
        "price": 99.99,
        "category": "Electronics",
        "description": (
            "Experience crystal clear sound with our advanced audio technology. These premium wireless "
            "headphones feature active noise cancellation, perfect for music lovers and professionals alike."
        ),
        "features": [
            "Active Noise Cancellation",
            "30-hour battery life",
            "Bluetooth 5.0",
            "Built-in microphone",
            "Lightweight ergonomic design",
            "Touch controls",
        ],
        "rating": 4.5,
        "review_count": 128,
        "colors": ["Black", "Silver", "Blue"],
        "warranty": "2 years manufacturer warranty",
        "image_url": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e",
    },
    {
        "name": "Flagship Smartphone Pro",
        "price": 999.99,
        "category": "Electronics",
        "description": "Our latest flagship smartphone with professional-grade camera system and all-day battery life.",
        "features": [
            '6.7" AMOLED Display',
            "Triple camera system",
            "128GB Storage",
            "5G Connectivity",
            "IP68 Water Resistance",
            "Wireless Charging",
        ],
        "rating": 4.7,
        "review_count": 256,
        "colors": ["Midnight Black", "Arctic Silver", "Ocean Blue"],
        "warranty": "1 year manufacturer warranty",
        "image_url": "https://images.unsplash.com/photo-1511707171634-5f897ff02aa9",
    },
    {
        "name": "Ultra-Slim Laptop",
        "price": 1299.99,
        "category": "Electronics",
        "description": "Professional ultra-slim laptop with powerful performance and stunning retina display.",
        "features": [
            '14" Retina Display',
            "16GB RAM",
            "512GB SSD",
            "10-hour battery life",
            "Backlit Keyboard",
            "Thunderbolt 4 Ports",
        ],
        "rating": 4.6,
        "review_count": 189,
        "colors": ["Space Gray", "Silver"],
        "warranty": "2 years limited warranty",
        "image_url": "https://images.unsplash.com/photo-1496181133206-80ce9b88a853",
    },
    {
        "name": "Smart Fitness Watch",
        "price": 249.99,
        "category": "Electronics",
        "description": "Advanced smartwatch with comprehensive health monitoring and fitness tracking features.",
        "features": [
            "Heart Rate Monitor",
            "Blood Oxygen Sensor",
            "50m Water Resistance",
            "7-day battery life",
            "GPS Tracking",
            "Sleep Analysis",
        ],
        "rating": 4.4,
        "review_count": 312,
        "colors": ["Black", "Rose Gold", "Midnight Blue"],
        "warranty": "1 year warranty",
        "image_url": "https://images.unsplash.com/photo-1523275335684-37898b6baf30",
    },
    {
        "name": "Premium Bluetooth Speaker",
        "price": 179.99,
        "category": "Electronics",
        "description": "Powerful portable speaker with immersive 360° sound and rugged, waterproof design.",
        "features": [
            "20-hour playtime",
            "IP67 Waterproof",
            "Party Mode (multi-speaker pairing)",
            "Built-in power bank",
            "Voice Assistant Compatible",
            "Shockproof design",
        ],
        "rating": 4.3,
        "review_count": 147,
        "colors": ["Black", "Red", "Teal"],
        "warranty": "1 year warranty",
        "image_url": "https://images.unsplash.com/photo-1572569511254-d8f925fe2cbb",
    },
    {
        "name": "Next-Gen Gaming Console",
        "price": 499.99,
        "category": "Electronics",
        "description": "Ultimate gaming console with cutting-edge graphics and lightning-fast load times.",
        "features": [
            "4K/120fps Gaming",
            "1TB SSD Storage",
            "Backward Compatibility",
            "Ray Tracing Support",
            "Ultra HD Blu-ray",
            "3D Audio Technology",
        ],
        "rating": 4.8,
        "review_count": 421,
        "colors": ["White", "Black"],
        "warranty": "1 year warranty",
        "image_url": "https://images.unsplash.com/photo-1607853202273-797f1c22a38e",
    },
    {
        "name": "Professional Mirrorless Camera",
        "price": 1499.99,
        "category": "Electronics",
        "description": "Professional-grade mirrorless camera with 4K video and advanced autofocus system.",
        "features": [
            "24.2MP Full-Frame Sensor",
            "4K 60p Video",
            "5-Axis Image Stabilization",
            "10fps Continuous Shooting",
            "Weather-Sealed Body",
            "Dual Memory Card Slots",
        ],
        "rating": 4.7,
        "review_count": 198,
        "colors": ["Black"],
        "warranty": "2 years warranty",
        "image_url": "https://images.unsplash.com/photo-1516035069371-29a1b244cc32",
    },
    {
        "name": "High-Performance Tablet",
        "price": 649.99,
        "category": "Electronics",
        "description": "Powerful tablet with pro-level performance and stunning liquid retina display.",
        "features": [
            '11" Liquid Retina Display',
            "A14 Bionic Chip",
            "128GB Storage",
            "Apple Pencil Support",
            "Magic Keyboard Compatible",
            "All-Day Battery Life",
        ],
        "rating": 4.6,
        "review_count": 231,
        "colors": ["Space Gray", "Silver", "Rose Gold"],
        "warranty": "1 year warranty",
        "image_url": "https://images.unsplash.com/photo-1546054454-aa26e2b734c7",
    },
    {
        "name": "True Wireless Earbuds Pro",
        "price": 199.99,
        "category": "Electronics",
        "description": "Premium wireless earbuds with active noise cancellation and spatial audio.",
        "features": [
            "Active Noise Cancellation",
            "Spatial Audio",
            "Sweat & Water Resistant",
            "6-hour battery (24h with case)",
            "Wireless Charging Case",
            "Customizable Fit",
        ],
        "rating": 4.4,
        "review_count": 342,
        "colors": ["White", "Black", "Blue"],
        "warranty": "1 year warranty",
        "image_url": "https://images.unsplash.com/photo-1590658268037-6bf12165a8df",
    },
]


def seed_catalogue(catalog, stock=DEFAULT_STOCK):
    """Add the default products unless the catalogue already has some.

    Returns the number of products added.
    """
    if catalog.list_products():
        logger.info("Catalogue already populated, skipping seed")
        return 0

    for entry in DEFAULT_PRODUCTS:
        fields = dict(entry)
        fields["colors"] = json.dumps(fields["colors"])
        fields["features"] = json.dumps(fields["features"])
        catalog.add_product(stock=stock, **fields)

    logger.info("Catalogue seeded", products=len(DEFAULT_PRODUCTS), stock=stock)
    return len(DEFAULT_PRODUCTS)

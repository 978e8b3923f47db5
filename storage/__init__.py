"""
Storage gateways: the MongoDB connection manager and the Cloudinary image host.
"""

"""
Bulletin-board backend package.

Posts and their comments are served by a FastAPI application that stores
collections in Redis and keeps a process-local fallback copy so the service
keeps answering while Redis is unreachable.
"""

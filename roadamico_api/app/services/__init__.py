"""
Service layer.

Each service encapsulates the business logic for one domain and talks
to SQLite directly.  Endpoints translate the exceptions raised here
into HTTP responses.
"""

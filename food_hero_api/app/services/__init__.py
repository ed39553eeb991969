"""
Service layer.

Each service encapsulates business logic for one concern and receives
its collaborators (database, stores, image backend) through its
constructor.  API handlers only translate HTTP into service calls.
"""

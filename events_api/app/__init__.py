"""
Application package initializer.

The project is organised into logical pieces: ``core`` holds
configuration, logging, errors, security and the database layer;
``pipeline`` holds the request validation and authorization stages;
``services`` wraps storage access per domain; ``schemas`` defines the
response models; and ``api/<version>/`` exposes the HTTP routers.
"""

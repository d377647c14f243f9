# mvcmovie/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- authentication: Identity cookie backend for the authentication middleware
- authorization: Named role-based policies
- bootstrap: Startup seeding of movies and default roles
- db: Database configuration and connection management
- external_auth: Facebook / Google login providers
- logging_config: Console / debug logging sinks
- middleware: Error pages, dev link and static file stages
- mvc / routing: Route template and controller dispatch
- security: Password hashing and signed tokens
"""

"""
Snippetbox: Services Layer
==========================

What:  Persistence and business rules, kept out of the route handlers.
How:   Each service receives the async session factory in its constructor and
       opens one short-lived session per call. Driver errors are wrapped in
       DatabaseError; domain outcomes (missing record, duplicate email, bad
       credentials) are raised as their own exceptions for handlers to map.

Service inventory:
    SnippetService   insert / get / latest
    UserService      insert / authenticate / exists / get / password_update
    SessionStore     abstract session persistence
                     (SQLSessionStore, MemorySessionStore)
"""

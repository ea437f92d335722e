"""
                        Services Module

Business logic behind the HTTP surface. External integrations follow the
hybrid pattern: each has Mock (development) and Real (production)
implementations selected by a cached factory.

Services:
    - backend: table-scoped row storage (memory or SQL)
    - cart: cart state container over injected key-value storage
    - chatbot: keyword chatbot responder
    - checkout: order placement sequence
    - admin: generic CRUD panels
    - auth: sign-up, sign-in and role checks
    - payment: Stripe payment intents
    - notifications: ranked email channels (SMTP, SendGrid)
    - realtime: row-insert broadcast to admin sessions
"""

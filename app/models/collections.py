"""Firestore collection names.

Collections are created on first write; these constants keep the names
consistent between the data-access layer, the realtime feeds and tests.
"""

# Profiles and progression
COLLECTION_USERS = "users"
SUBCOLLECTION_DAILY_MISSIONS = "dailyMissions"
COLLECTION_MISSIONS = "missions"
COLLECTION_REFERRALS = "referrals"
COLLECTION_AUTH_ACCOUNTS = "auth_accounts"

# Store
COLLECTION_PRODUCTS = "products"
COLLECTION_PURCHASES = "purchases"
COLLECTION_PRODUCT_REVIEWS = "product_reviews"

# Community
COLLECTION_POSTS = "posts"
SUBCOLLECTION_COMMENTS = "comments"
COLLECTION_TOOLS = "tools"
COLLECTION_NOTIFICATIONS = "notifications"
COLLECTION_PRESENCE = "presence"

# Chat
COLLECTION_CONVERSATIONS = "conversations"
SUBCOLLECTION_MESSAGES = "messages"
COLLECTION_GLOBAL_CHAT = "globalChat"

# Tutorials
COLLECTION_TUTORIAL_TOPICS = "tutorial_topics"
COLLECTION_TUTORIAL_LESSONS = "tutorial_lessons"
COLLECTION_TUTORIAL_VIEWS = "tutorial_views"
COLLECTION_TUTORIAL_REVIEWS = "tutorial_reviews"

# Support
COLLECTION_SUPPORT_TICKETS = "support_tickets"
COLLECTION_TICKET_MESSAGES = "ticket_messages"

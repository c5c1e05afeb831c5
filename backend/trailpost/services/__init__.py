# Services package init
"""
Trailpost Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Each service is a stateless class with a module-level singleton; every
       method takes the request's AsyncSession as its first argument.

Service Inventory:
    - SocialGraphService: follow / unfollow, follower and following ids
    - EngagementService:  likes, saves and comments
    - FeedService:        personal feed and public post listing
    - PostService:        post creation
    - UserService:        profiles, profile updates, directory search
    - AuthService:        registration and login
    - FileService:        upload validation, blob storage and cleanup
    - lookups:            require_user / require_post helpers shared by all
"""

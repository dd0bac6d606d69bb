"""
Services package.

- auth: login, logout, lockout and password reset
- cron_jobs: scheduled expiry sweep
"""

"""Authentication service: login, refresh token rotation and Google OAuth."""

"""Teaching use cases: compound mutations over the site document and user list."""

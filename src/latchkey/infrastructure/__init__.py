"""Infrastructure components: hashing, persistence, email and HTTP transport."""

"""Infrastructure — logging setup and concrete collaborator implementations."""

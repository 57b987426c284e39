"""Local JSON API over a document repository."""

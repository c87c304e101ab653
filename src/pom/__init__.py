"""pom.xml document model, canonical ordering and edit commands."""

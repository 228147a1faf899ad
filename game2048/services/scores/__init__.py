"""Score services: validation, submission and ranking.

HTTP routes and socket handlers import from here so transport concerns
stay out of the ranking rules.
"""

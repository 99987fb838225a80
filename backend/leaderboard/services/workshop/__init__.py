"""Workshop domain services: milestones, ranking, timer and persistence.

This package contains the pure(ish) leaderboard logic imported by the HTTP
routes and socket handlers, keeping transport concerns separated from the
milestone state machine and the ranking rules.
"""

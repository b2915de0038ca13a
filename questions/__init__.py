"""
Questions module for Trivia Engine.
Question store interface, in-memory store and the database-backed manager.
"""

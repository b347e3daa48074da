"""
Service layer for the Motion Studio video generator: segment planning,
prompt synthesis, content generation, validation, composition assembly,
rendering and job orchestration.
"""

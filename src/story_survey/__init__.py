"""
Core library package for story-survey-service.

This package holds the survey building blocks (draft schema, section rules,
submission mapping, post-submit effects and the form state controller).

- Runtime package: `src/story_survey/`
- HTTP entrypoint: `api/main.py`
"""

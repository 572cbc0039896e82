# PR Review Agent - Package
#
# This package reviews the changed code of a pull request one diff hunk at
# a time. Each stage is in its own file following the one-function-per-file
# architecture pattern (the data model and errors live in models.py and
# errors.py so every stage can share them).
#
# The pipeline is orchestrated by review_pipeline_main.py and runs inside a
# GitHub Actions runner. It reads the GitHub event payload, fetches the pull
# request diff, asks a language model to critique every hunk, and writes the
# resulting inline comments back to GitHub as one review.
#
# Stage flow:
#   1. Parse Diff -> 2. Build Hunk Prompt -> 3. Request Model Review
#   -> 4. Interpret Response -> 5. Map Review Comments
#   -> 6. GitHub Pull Request (fetch context/diff, submit review)

__version__ = "1.0.0"

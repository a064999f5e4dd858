"""Page acquisition: HTTP fetch for the CLI and a Playwright live page host."""

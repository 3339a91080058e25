"""Core rule language: IR, lexer, parser, evaluator, errors and config."""

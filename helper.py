from rulebook_lexer import Token


def print_token_gray(token: Token) -> None:
    """
    Print a token in gray using ANSI escape codes.
    """
    GRAY = "\033[90m"
    RESET = "\033[0m"
    print(f"{GRAY}{token}{RESET}")

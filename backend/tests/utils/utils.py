import random
import string


def random_lower_string(length: int = 32) -> str:
    return "".join(random.choices(string.ascii_lowercase, k=length))


def random_digits(length: int) -> str:
    return "".join(random.choices(string.digits, k=length))

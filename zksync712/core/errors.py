"""
zksync712 exception hierarchy
"""


class Eip712Error(Exception):
    """Base exception"""
    pass


class TypeGraphError(Eip712Error, ValueError):
    """Malformed set of struct declarations"""
    pass


class DuplicateFieldError(TypeGraphError):
    pass


class CircularTypeError(TypeGraphError):
    pass


class UnknownTypeError(TypeGraphError):
    pass


class PrimaryTypeError(TypeGraphError):
    """Zero or several root structs"""
    pass


class InvalidTypeError(Eip712Error, ValueError):
    """Invalid numeric or bytes width in a type name"""
    pass


class InvalidValueError(Eip712Error, ValueError):
    """Value does not fit the declared type"""
    pass


class ValueOutOfBoundsError(InvalidValueError):
    pass


class ArrayLengthError(InvalidValueError):
    pass


class InvalidDomainError(Eip712Error, ValueError):
    pass


class NameResolutionError(Eip712Error, LookupError):
    pass


class SignatureError(Eip712Error, ValueError):
    pass


class BytecodeError(Eip712Error, ValueError):
    pass


class TransactionError(Eip712Error, ValueError):
    """Transaction envelope error"""
    pass


class MissingFieldError(TransactionError):
    pass


class EmptySignatureError(TransactionError):
    pass


class InvalidPaymasterParamsError(TransactionError):
    pass


class SignatureParseError(TransactionError):
    pass

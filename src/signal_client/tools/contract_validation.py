class BaseType:

    def __init__(self):
        raise Exception("Cannot instantiate")

    @staticmethod
    def validate():
        raise NotImplementedError("Subclasses should implement this!")


class NumberType(BaseType):

    @staticmethod
    def validate(value):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError("Value must be a number.")


class StringType(BaseType):

    @staticmethod
    def validate(value):
        if not isinstance(value, str):
            raise TypeError("Value must be a string.")


class OptionalType(BaseType):

    def __init__(self, item_type):
        self.item_type = item_type

    def validate(self, value):
        if value is not None:
            self.item_type.validate(value)


## Inbound signal envelope. Every field may be absent: a missing field
## decodes to its empty value, the way the server's zero values look.
SIGNAL_CONTRACT = {
    "signal": OptionalType(StringType),
    "peer": OptionalType(StringType),
    "correlation_id": OptionalType(StringType),
}

LOGIN_CONTRACT = {
    "signal": StringType,
    "login": StringType,
}

SESSION_DESCRIPTION_CONTRACT = {
    "sdp": StringType,
    "type": StringType,
}

ICE_CANDIDATE_CONTRACT = {
    "candidate": OptionalType(StringType),  # null or "" marks end-of-candidates
    "sdpMid": OptionalType(StringType),
    "sdpMLineIndex": OptionalType(NumberType),
}


def validate_contract(contract, data):
    if not isinstance(data, dict):
        raise TypeError("Message must be a JSON object.")
    for key, value in contract.items():
        if key not in data:
            if isinstance(value, OptionalType):
                continue
            raise KeyError(f"Missing key: {key}")
        if isinstance(value, dict):
            validate_contract(value, data[key])
        else:
            try:
                value.validate(data[key])
            except TypeError as e:
                raise TypeError(f"{key}: {e}") from e


class ContractValidationError(Exception):
    """Exception raised when contract validation fails."""

    def __init__(self, error_type: str, message: str):
        self.error_type = error_type
        self.message = message
        super().__init__(message)


def check_contract(contract, data):
    """
    Validate a contract and raise a single exception type on failure.

    Args:
        contract: The contract schema to validate against
        data: The decoded message to validate

    Raises:
        ContractValidationError: with error_type "missing_field" or "type_mismatch"
    """
    try:
        validate_contract(contract, data)
    except KeyError as e:
        raise ContractValidationError(
            "missing_field", f"Missing required field: {e.args[0]}"
        ) from e
    except TypeError as e:
        raise ContractValidationError("type_mismatch", f"Invalid field type: {e}") from e

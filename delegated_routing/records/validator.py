import logging

from delegated_routing.records.utils import InvalidRecordType, split_key

logger = logging.getLogger(__name__)


class Validator:
    """Base class for all validators"""

    def validate(self, key: str, value: bytes) -> None:
        raise NotImplementedError

    def select(self, key: str, values: list[bytes]) -> int:
        raise NotImplementedError


class NamespacedValidator(Validator):
    """
    Manages a collection of validators, each associated with a specific namespace.
    """

    def __init__(self, validators: dict[str, Validator]):
        self._validators = validators

    def validator_by_key(self, key: str) -> Validator | None:
        """
        Retrieve the validator responsible for the given key's namespace.

        Args:
            key (str): A namespaced key in the form "/namespace/value".

        Returns:
            Optional[Validator]: The matching validator, or None if not found.

        """
        try:
            ns, _ = split_key(key)
        except InvalidRecordType:
            return None
        return self._validators.get(ns)

    def validate(self, key: str, value: bytes) -> None:
        """
        Validate a key-value pair using the appropriate namespaced validator.

        Raises:
            InvalidRecordType: If no matching validator is found.

        """
        validator = self.validator_by_key(key)
        if validator is None:
            logger.debug("no validator for key %s", key)
            raise InvalidRecordType("Invalid record keytype")
        validator.validate(key, value)

    def select(self, key: str, values: list[bytes]) -> int:
        if not values:
            raise ValueError("Can't select from empty value list")
        validator = self.validator_by_key(key)
        if validator is None:
            raise InvalidRecordType("Invalid record keytype")
        return validator.select(key, values)

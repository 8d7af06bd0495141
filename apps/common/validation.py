from typing import Any, Dict, Type

from rest_framework import serializers

from .exceptions import ValidationFailed


def validate_payload(serializer_class: Type[serializers.Serializer], data: Any, **kwargs) -> Dict[str, Any]:
    """Run a serializer over a request payload and return its validated data.

    All field issues are collected and raised together as ``ValidationFailed``.
    """
    serializer = serializer_class(data=data, **kwargs)
    if not serializer.is_valid():
        raise ValidationFailed.from_serializer_errors(serializer.errors)
    return serializer.validated_data

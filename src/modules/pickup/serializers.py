from rest_framework import serializers

from modules.orders.dtos import TIME_PATTERN


class ValidateSlotSerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.RegexField(
        TIME_PATTERN, error_messages={"invalid": "Time must be in HH:MM format."}
    )

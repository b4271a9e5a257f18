from rest_framework import serializers

from modules.system.models import NOTES_MAX_LENGTH


class InternationalSettingsSerializer(serializers.Serializer):
    enabled = serializers.BooleanField()
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=NOTES_MAX_LENGTH,
        error_messages={
            "max_length": f"Notes cannot exceed {NOTES_MAX_LENGTH} characters."
        },
    )


class SupportedCountriesSerializer(serializers.Serializer):
    countries = serializers.ListField(
        child=serializers.CharField(allow_blank=False, max_length=100),
        allow_empty=False,
    )


class ResetSettingsSerializer(serializers.Serializer):
    confirm_reset = serializers.BooleanField()

    def validate_confirm_reset(self, value: bool) -> bool:
        if not value:
            raise serializers.ValidationError(
                "Confirmation required to reset settings."
            )
        return value

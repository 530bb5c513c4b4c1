from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    """Staff sign-in; any extra fields (e.g. ``role``) are ignored."""
    username = serializers.CharField(max_length=150, error_messages={'blank': 'Username is required'})
    password = serializers.CharField(max_length=128, trim_whitespace=False, write_only=True,
                                     error_messages={'blank': 'Password is required'})

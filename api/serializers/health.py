from rest_framework import serializers


class HealthCheckSerializer(serializers.Serializer):
    """
    Response serializer for health check endpoint.
    """
    status = serializers.CharField()
    version = serializers.CharField()
    database = serializers.CharField()
    timestamp = serializers.DateTimeField()

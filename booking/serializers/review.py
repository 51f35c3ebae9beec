import bleach
from rest_framework import serializers


class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    content = serializers.CharField(required=False, allow_blank=True, max_length=1000, default='')

    def validate_content(self, v):
        return bleach.clean((v or '').strip(), tags=set(), strip=True)


class ReviewVisibilitySerializer(serializers.Serializer):
    visible = serializers.BooleanField()

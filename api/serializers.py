# api/serializers.py
import math

from rest_framework import serializers

from algorithms.blood_compatibility import BLOOD_TYPES
from donors.repositories import ROLES


class CoordinatesSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)

    def validate(self, attrs):
        # NaN slips past the range validators
        if not all(math.isfinite(attrs[k]) for k in ('lat', 'lng')):
            raise serializers.ValidationError('Coordinates must be finite numbers.')
        return attrs


class ProfileSerializer(serializers.Serializer):
    """Fields a user may set on their own profile."""
    role = serializers.ChoiceField(choices=ROLES, required=False)
    full_name = serializers.CharField(required=False, max_length=200)
    email = serializers.EmailField(required=False, allow_null=True)
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=30)
    blood_type = serializers.ChoiceField(choices=BLOOD_TYPES, required=False, allow_null=True)
    is_available = serializers.BooleanField(required=False)
    location = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=200)
    coordinates = CoordinatesSerializer(required=False, allow_null=True)


class AcceptRequestSerializer(serializers.Serializer):
    donor_message = serializers.CharField(required=False, allow_blank=True, default='')


class AvailabilitySerializer(serializers.Serializer):
    is_available = serializers.BooleanField()


class MatchQuerySerializer(serializers.Serializer):
    """Query string of the match preview endpoint."""
    blood_type = serializers.ChoiceField(choices=BLOOD_TYPES)
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
    radius_km = serializers.FloatField(required=False, min_value=0)


class RadiusQuerySerializer(serializers.Serializer):
    radius_km = serializers.FloatField(required=False, min_value=0)


class DonorSerializer(serializers.Serializer):
    """Public view of a donor profile; contact details stay private."""
    id = serializers.CharField()
    full_name = serializers.CharField(required=False, allow_null=True)
    blood_type = serializers.CharField()
    is_available = serializers.BooleanField()
    location = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    coordinates = CoordinatesSerializer(required=False, allow_null=True)


class MatchCandidateSerializer(serializers.Serializer):
    donor = DonorSerializer()
    distance_km = serializers.FloatField()

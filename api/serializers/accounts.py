"""
Staff, customer and authentication serializers
"""
from rest_framework import serializers

from apps.accounts.models import Customer, Staff


class StaffSerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = [
            'id', 'name', 'email', 'phone', 'image_url', 'joining_date', 'role',
            'published', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class StaffWriteSerializer(serializers.ModelSerializer):
    """
    Staff create/update. ``password`` is write-only and hashed on save.
    """
    password = serializers.CharField(write_only=True, required=False, min_length=6)

    class Meta:
        model = Staff
        fields = [
            'name', 'email', 'password', 'phone', 'image_url', 'joining_date',
            'role', 'published', 'is_active',
        ]

    def validate_email(self, value):
        value = value.lower()
        qs = Staff.objects.filter(email__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Email already registered")
        return value

    def validate(self, attrs):
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({"password": "This field is required."})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop('password')
        staff = Staff(**validated_data)
        staff.set_password(password)
        staff.save()
        return staff

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = [
            'id', 'name', 'email', 'phone', 'firebase_uid', 'google_id', 'image_url',
            'role', 'is_active', 'address', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class CustomerWriteSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, min_length=6)
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)

    class Meta:
        model = Customer
        fields = [
            'name', 'email', 'phone', 'password', 'firebase_uid', 'google_id',
            'image_url', 'is_active', 'address',
        ]

    def _unique(self, field, value):
        qs = Customer.objects.filter(**{f'{field}__iexact': value})
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError(f"Customer with this {field} already exists")

    def validate_email(self, value):
        if not value:
            return None
        value = value.lower()
        self._unique('email', value)
        return value

    def validate_phone(self, value):
        if not value:
            return None
        self._unique('phone', value)
        return value

    def validate(self, attrs):
        email = attrs.get('email', getattr(self.instance, 'email', None))
        phone = attrs.get('phone', getattr(self.instance, 'phone', None))
        if not email and not phone:
            raise serializers.ValidationError("Either email or phone is required")
        return attrs

    def create(self, validated_data):
        password = validated_data.pop('password', None)
        customer = Customer(**validated_data)
        if password:
            customer.set_password(password)
        customer.save()
        return customer

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class UpdatePasswordSerializer(serializers.Serializer):
    """
    Either an authenticated change (``currentPassword`` + ``newPassword``)
    or a reset (``code`` + ``password`` + ``confirmPassword``).
    """
    currentPassword = serializers.CharField(required=False, write_only=True)
    newPassword = serializers.CharField(required=False, write_only=True)
    code = serializers.CharField(required=False)
    password = serializers.CharField(required=False, write_only=True)
    confirmPassword = serializers.CharField(required=False, write_only=True)

    def validate(self, attrs):
        if attrs.get('code'):
            if not attrs.get('password') or not attrs.get('confirmPassword'):
                raise serializers.ValidationError("password and confirmPassword are required with a reset code")
        elif not attrs.get('currentPassword') or not attrs.get('newPassword'):
            raise serializers.ValidationError("currentPassword and newPassword are required")
        return attrs


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()

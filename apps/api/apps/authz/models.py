"""
Authz models: auth_user, auth_role

A user holds exactly one role; a role grants a set of permissions.
"""
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin


# ============================================================================
# Enums
# ============================================================================

class PermissionChoices(models.TextChoices):
    """
    Fixed permission names a role can grant.

    - TEST: Smoke-test access (no clinical data)
    - VITALS: Registration queue + vitals intake
    - DOCTOR: Consultation, prescriptions, lab requests, patient history
    - ADMIN: Role administration, override audit trail
    - LAB: Lab report processing
    - INVENTORY: Pharmacy stock management
    """
    TEST = 'test', 'Test access'
    VITALS = 'vitals', 'Vitals intake'
    DOCTOR = 'doctor', 'Doctor consultation'
    ADMIN = 'admin', 'Administration'
    LAB = 'lab', 'Lab processing'
    INVENTORY = 'inventory', 'Pharmacy inventory'


# ============================================================================
# Roles
# ============================================================================

class Role(models.Model):
    """
    Named bundle of permissions.

    ``allowed`` is a list of PermissionChoices values.
    """
    name = models.CharField(max_length=100, unique=True)
    allowed = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'auth_role'
        verbose_name = 'Role'
        verbose_name_plural = 'Roles'
        ordering = ['name']

    def __str__(self):
        return self.name

    def grants(self, permission):
        return permission in (self.allowed or [])


# ============================================================================
# User Management
# ============================================================================

class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Staff account (doctor, lab technician, vitals desk, pharmacist, admin).

    Integer ids: they are stored in Case.associated_users and
    StoredFile.allowed lists.
    """
    email = models.EmailField(unique=True, max_length=255)
    username = models.CharField(max_length=150, unique=True, null=True, blank=True)
    name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    role = models.ForeignKey(
        Role,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='users'
    )
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)  # Required for admin access
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'auth_user'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['email'], name='idx_user_email'),
            models.Index(fields=['is_active'], name='idx_user_active'),
        ]

    def __str__(self):
        return self.name or self.email

    @property
    def permission_set(self):
        return frozenset(self.role.allowed) if self.role_id else frozenset()

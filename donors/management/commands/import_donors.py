# donors/management/commands/import_donors.py
"""
Django management command to import donor profiles from CSV or Excel
Usage: python manage.py import_donors path/to/donors.csv
"""

import uuid
from pathlib import Path

import pandas as pd
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from algorithms.blood_compatibility import BLOOD_TYPES
from donors.repositories import ROLE_DONOR, DonorRepository
from storage.kv import DatabaseKeyValueStore


def _clean(value):
    """pandas uses NaN for empty cells."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    return value


def _parse_bool(value, default=True):
    value = _clean(value)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'y')
    return bool(value)


class Command(BaseCommand):
    help = 'Import donors from a CSV or Excel file into the key-value store'

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Path to the .csv, .xls or .xlsx file')

    def read_frame(self, path):
        suffix = Path(path).suffix.lower()
        if suffix == '.csv':
            return pd.read_csv(path, dtype={'phone': str, 'id': str})
        if suffix in ('.xls', '.xlsx'):
            return pd.read_excel(path, dtype={'phone': str, 'id': str})
        raise CommandError(f'Unsupported file type: {suffix}')

    def handle(self, *args, **options):
        path = options['path']

        self.stdout.write(self.style.WARNING(f'Starting import from {path}...'))

        try:
            df = self.read_frame(path)
        except FileNotFoundError:
            raise CommandError(f'File not found: {path}')

        self.stdout.write(f'Found {len(df)} rows')

        repository = DonorRepository(DatabaseKeyValueStore())

        imported_count = 0
        updated_count = 0
        skipped_count = 0

        for index, row in df.iterrows():
            line = index + 2  # header is line 1

            full_name = _clean(row.get('full_name', row.get('name')))
            blood_type = _clean(row.get('blood_type', row.get('blood_group')))

            if not full_name:
                self.stdout.write(self.style.WARNING(f'Skipping row {line}: Missing name'))
                skipped_count += 1
                continue

            blood_type = str(blood_type or '').strip().upper()
            if blood_type not in BLOOD_TYPES:
                self.stdout.write(self.style.WARNING(f'Skipping row {line}: Invalid blood type {blood_type!r}'))
                skipped_count += 1
                continue

            latitude = _clean(row.get('latitude'))
            longitude = _clean(row.get('longitude'))
            coordinates = None
            if latitude is not None and longitude is not None:
                try:
                    coordinates = {'lat': float(latitude), 'lng': float(longitude)}
                except (TypeError, ValueError):
                    self.stdout.write(self.style.WARNING(f'Row {line}: Invalid coordinates, importing without location'))

            donor_id = _clean(row.get('id')) or f'imported_{uuid.uuid4().hex[:12]}'
            existing = repository.get_profile(donor_id)

            profile = {
                **(existing or {}),
                'id': str(donor_id),
                'role': ROLE_DONOR,
                'full_name': str(full_name).strip(),
                'email': _clean(row.get('email')),
                'phone': _clean(row.get('phone')),
                'blood_type': blood_type,
                'is_available': _parse_bool(row.get('is_available')),
                'location': _clean(row.get('location', row.get('address'))),
                'coordinates': coordinates,
                'updated_at': timezone.now().isoformat(),
            }
            repository.save_profile(profile)

            if existing:
                updated_count += 1
                self.stdout.write(f'↻ Updated: {profile["full_name"]} ({blood_type})')
            else:
                imported_count += 1
                self.stdout.write(f'✓ Created: {profile["full_name"]} ({blood_type})')

        self.stdout.write(
            self.style.SUCCESS(
                f'\n✅ Import complete!\n'
                f'Created: {imported_count}\n'
                f'Updated: {updated_count}\n'
                f'Skipped: {skipped_count}\n'
                f'Total: {imported_count + updated_count}'
            )
        )

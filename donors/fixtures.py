# donors/fixtures.py
"""
Demo population served to demo callers. Locations are around lower and
midtown Manhattan so a request placed in New York finds nearby donors.
"""

from accounts.identity import DEMO_USER_ID

DEMO_PROFILES = [
    {
        'id': 'demo_donor_1',
        'role': 'donor',
        'full_name': 'Sarah Johnson',
        'email': 'sarah.johnson@demo.com',
        'phone': '(212) 555-0101',
        'blood_type': 'O-',
        'is_available': True,
        'location': 'Lower Manhattan, New York',
        'coordinates': {'lat': 40.7145, 'lng': -74.0071},
    },
    {
        'id': 'demo_donor_2',
        'role': 'donor',
        'full_name': 'Michael Chen',
        'email': 'michael.chen@demo.com',
        'phone': '(212) 555-0102',
        'blood_type': 'O+',
        'is_available': True,
        'location': 'Midtown, New York',
        'coordinates': {'lat': 40.7549, 'lng': -73.9840},
    },
    {
        'id': 'demo_donor_3',
        'role': 'donor',
        'full_name': 'Emily Rodriguez',
        'email': 'emily.rodriguez@demo.com',
        'phone': '(718) 555-0103',
        'blood_type': 'A+',
        'is_available': True,
        'location': 'Brooklyn Heights, New York',
        'coordinates': {'lat': 40.6959, 'lng': -73.9956},
    },
    {
        'id': 'demo_donor_4',
        'role': 'donor',
        'full_name': 'David Thompson',
        'email': 'david.thompson@demo.com',
        'phone': '(718) 555-0104',
        'blood_type': 'B+',
        'is_available': False,
        'location': 'Astoria, New York',
        'coordinates': {'lat': 40.7644, 'lng': -73.9235},
    },
    {
        'id': 'demo_donor_5',
        'role': 'donor',
        'full_name': 'Priya Patel',
        'email': 'priya.patel@demo.com',
        'phone': '(201) 555-0105',
        'blood_type': 'AB-',
        'is_available': True,
        'location': 'Jersey City, New Jersey',
        'coordinates': None,
    },
    {
        # the demo caller itself: a donor who is not currently available
        'id': DEMO_USER_ID,
        'role': 'donor',
        'full_name': 'Demo Donor',
        'email': 'demo@demo.com',
        'phone': '(212) 555-0100',
        'blood_type': 'O+',
        'is_available': False,
        'location': 'New York',
        'coordinates': {'lat': 40.7128, 'lng': -74.0060},
    },
    {
        'id': 'demo_patient_1',
        'role': 'patient',
        'full_name': 'Demo Patient',
        'email': 'patient@demo.com',
        'phone': '(212) 555-0199',
        'blood_type': 'O+',
        'is_available': False,
        'location': 'New York',
        'coordinates': {'lat': 40.7128, 'lng': -74.0060},
    },
]

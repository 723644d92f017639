"""
Blood Type Compatibility Helper
Determines which donor blood types can donate to which recipient blood types
"""

BLOOD_TYPES = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']

UNIVERSAL_DONOR = 'O-'
UNIVERSAL_RECIPIENT = 'AB+'


def split_blood_type(blood_type):
    """Split 'AB-' into ('AB', '-')."""
    return blood_type[:-1], blood_type[-1:]


def is_compatible(donor_blood_type, recipient_blood_type):
    """
    Check if donor blood type is compatible with recipient

    Rules are evaluated in order and the first one that applies wins:
    O- gives to everyone, AB+ receives from everyone, identical types
    match, Rh-positive blood never goes to an Rh-negative recipient, and
    then the ABO axis decides (O to all, A to A/AB, B to B/AB, AB to AB).

    Args:
        donor_blood_type: Donor's blood type (e.g., 'O+')
        recipient_blood_type: Recipient's blood type (e.g., 'A+')

    Returns:
        Boolean: True if compatible, False otherwise
    """
    if donor_blood_type not in BLOOD_TYPES or recipient_blood_type not in BLOOD_TYPES:
        return False

    if donor_blood_type == UNIVERSAL_DONOR:
        return True
    if recipient_blood_type == UNIVERSAL_RECIPIENT:
        return True
    if donor_blood_type == recipient_blood_type:
        return True

    donor_abo, donor_rh = split_blood_type(donor_blood_type)
    recipient_abo, recipient_rh = split_blood_type(recipient_blood_type)

    if donor_rh == '+' and recipient_rh == '-':
        return False

    if donor_abo == 'O':
        return True
    if donor_abo == 'A':
        return recipient_abo in ('A', 'AB')
    if donor_abo == 'B':
        return recipient_abo in ('B', 'AB')
    if donor_abo == 'AB':
        return recipient_abo == 'AB'

    return False


def get_compatible_donors(recipient_blood_type):
    """
    Get list of blood types that can donate to recipient

    Args:
        recipient_blood_type: Recipient's blood type

    Returns:
        List of compatible donor blood types
    """
    return [donor_type for donor_type in BLOOD_TYPES
            if is_compatible(donor_type, recipient_blood_type)]


def get_compatible_recipients(donor_blood_type):
    """
    Get list of blood types that can receive from donor
    """
    return [recipient_type for recipient_type in BLOOD_TYPES
            if is_compatible(donor_blood_type, recipient_type)]

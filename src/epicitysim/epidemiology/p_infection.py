def get_vaccine_protection_factor(infectee, variant, base_vaccine_protection):
    """
    Factor by which the vaccine divides the probability of infection. The dose protects fully
    against the variant it was formulated against and half as much against any other variant.
    A protection below 1 would increase the probability, so the halved factor is floored at 1.

    Args:
        infectee (epicitysim.human.Human): human who may get infected
        variant (int): variant the infector carries
        base_vaccine_protection (float): protection factor of a matching dose (> 1)

    Returns:
        (float): divisor of the probability of infection, 1 if `infectee` is not vaccinated
    """
    if not infectee.is_vaccinated:
        return 1.0
    if infectee.vaccine_variant == variant:
        return base_vaccine_protection
    return max(1.0, base_vaccine_protection / 2)


def get_human_human_p_transmission(variant_rate, infectee, variant, contact_multiplier, conf):
    """
    Computes probability of virus transmission to `infectee` from a human carrying `variant`.

    The probability is proportional to
        - the infection rate of the variant
        - the kind of contact, family contacts being more intense than incidental ones
    It is divided by the vaccine protection of the infectee and is 0 if the infectee already had
    this variant and `REINFECTION_IMMUNITY` is enabled.

    Args:
        variant_rate (float): infection rate of `variant`
        infectee (epicitysim.human.Human): human who may get infected
        variant (int): variant the infector carries
        contact_multiplier (float): `FAMILY_CONTACT_MULTIPLIER` for family members, 1 otherwise
        conf (dict): yaml configuration of the experiment

    Returns:
        (float): probability of virus transmission in [0, 1]
    """
    if conf['REINFECTION_IMMUNITY'] and variant in infectee.infection_history:
        return 0.0

    p_infection = variant_rate * contact_multiplier
    p_infection /= get_vaccine_protection_factor(infectee, variant, conf['BASE_VACCINE_PROTECTION'])
    return min(1.0, max(0.0, p_infection))

"""
A list of constants to be consistent across different scripts.
"""

#
# Time.
#
# A simulated day is exactly 24 hours (ephemeris day). Daylight saving time
# is ignored everywhere, see `epicitysim.utils.env.Env.timestamp`.
#
SECONDS_PER_MINUTE        = 60
SECONDS_PER_HOUR          = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY           = 24 * SECONDS_PER_HOUR
HOURS_PER_DAY             = 24

# age categories
ADULT                     = "adult"
CHILD                     = "child"
AGE_CATEGORIES            = [ADULT, CHILD]

# identifier of the founding strain
FOUNDING_VARIANT_ID       = 0

# channels through which an infection happens
FAMILY_CONTACT            = "family"
PROXIMITY_CONTACT         = "proximity"
INITIAL_SEEDING           = "seed"

# test results
NEGATIVE_TEST_RESULT      = "negative"
POSITIVE_TEST_RESULT      = "positive"

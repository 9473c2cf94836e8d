# flake8: noqa

from .math import exp_map_jac
from .math import exp_map_jac_dot
from .math import exp_map_rot
from .math import is_finite
from .math import log_map
from .math import matrix2quaternion
from .math import normalize_vector
from .math import outer_product_matrix
from .math import random_rotation
from .math import random_translation
from .math import rotation_angle
from .math import rotation_matrix

from .spatial import ad
from .spatial import ad_inv_t
from .spatial import ad_inv_t_jac
from .spatial import ad_jac
from .spatial import ad_t
from .spatial import ad_t_jac
from .spatial import ad_t_jac_fixed
from .spatial import inverse_transform
from .spatial import make_transform
from .spatial import verify_transform

_trimesh = None


def _lazy_trimesh():
    global _trimesh
    if _trimesh is None:
        import trimesh
        _trimesh = trimesh
    return _trimesh


_scipy_rotation = None


def _lazy_scipy_rotation():
    global _scipy_rotation
    if _scipy_rotation is None:
        from scipy.spatial.transform import Rotation
        _scipy_rotation = Rotation
    return _scipy_rotation

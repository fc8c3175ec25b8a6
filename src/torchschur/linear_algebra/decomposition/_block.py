from torch import Tensor


def block(
    matrix: Tensor, row: int, column: int, rows: int, columns: int
) -> Tensor:
    """Writable view of ``matrix[row:row + rows, column:column + columns]``.

    Unlike slicing, extents that run past the matrix raise instead of being
    truncated.

    Raises
    ------
    IndexError
        If the requested block does not fit inside ``matrix``.
    """
    if (
        row < 0
        or column < 0
        or rows < 0
        or columns < 0
        or row + rows > matrix.shape[-2]
        or column + columns > matrix.shape[-1]
    ):
        raise IndexError(
            f"block ({row}, {column}, {rows}, {columns}) out of range for "
            f"matrix of shape {tuple(matrix.shape)}"
        )
    return matrix.narrow(-2, row, rows).narrow(-1, column, columns)

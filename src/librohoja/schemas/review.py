"""
Esquemas Pydantic para la entidad Review en la API de LibroHoja.
Define el modelo de entrada para la creación de reseñas.
"""

from pydantic import BaseModel, Field
from typing import Optional

class ReviewBase(BaseModel):
    """
    Esquema base para una reseña.

    Atributos:
        rating (int): Calificación entre 1 y 5.
        comment (Optional[str]): Comentario opcional de la reseña.
    """
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

class ReviewCreate(ReviewBase):
    """
    Esquema para la creación de una reseña.
    No requiere campos adicionales; user_id y book_id se gestionan aparte.
    """
    pass

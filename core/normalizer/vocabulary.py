"""
Static vocabularies used to analyze profiles and score candidates.

Every term here is stored accent-folded and lower-cased so it can be
compared directly against fold_text() output.
"""
from typing import Dict, List

# NAF division (first two digits) -> sector label
NAF_SECTOR_MAP: Dict[str, str] = {
    '01': 'Agriculture', '02': 'Sylviculture', '03': 'Pêche',
    '05': 'Mines', '06': 'Énergie', '07': 'Mines', '08': 'Carrières', '09': 'Énergie',
    '10': 'Agroalimentaire', '11': 'Agroalimentaire', '12': 'Industrie',
    '13': 'Textile', '14': 'Textile', '15': 'Cuir', '16': 'Bois', '17': 'Papier',
    '18': 'Imprimerie', '19': 'Énergie', '20': 'Chimie', '21': 'Pharmacie',
    '22': 'Plasturgie', '23': 'Matériaux', '24': 'Métallurgie', '25': 'Métallurgie',
    '26': 'Électronique', '27': 'Électronique', '28': 'Mécanique', '29': 'Automobile',
    '30': 'Aéronautique', '31': 'Ameublement', '32': 'Industrie', '33': 'Industrie',
    '35': 'Énergie',
    '36': 'Environnement', '37': 'Environnement', '38': 'Environnement', '39': 'Environnement',
    '41': 'Construction', '42': 'Construction', '43': 'Construction',
    '45': 'Commerce', '46': 'Commerce', '47': 'Commerce',
    '49': 'Transport', '50': 'Transport', '51': 'Transport', '52': 'Logistique', '53': 'Logistique',
    '55': 'Tourisme', '56': 'Restauration',
    '58': 'Édition', '59': 'Audiovisuel', '60': 'Audiovisuel', '61': 'Télécommunications',
    '62': 'Numérique', '63': 'Numérique',
    '64': 'Finance', '65': 'Assurance', '66': 'Finance', '68': 'Immobilier',
    '69': 'Services', '70': 'Conseil', '71': 'Ingénierie', '72': 'R&D',
    '73': 'Communication', '74': 'Design', '75': 'Santé animale',
    '77': 'Services', '78': 'RH', '79': 'Tourisme', '80': 'Sécurité', '81': 'Services', '82': 'Services',
    '84': 'Public', '85': 'Formation',
    '86': 'Santé', '87': 'Social', '88': 'Social',
    '90': 'Culture', '91': 'Culture', '92': 'Jeux', '93': 'Sport',
    '94': 'Associatif', '95': 'Services', '96': 'Services',
}

# Alternative spellings folded onto one sector key
SECTOR_ALIASES: Dict[str, str] = {
    'btp': 'construction',
    'batiment': 'construction',
    'informatique': 'numerique',
    'digital': 'numerique',
    'agricole': 'agriculture',
    'industriel': 'industrie',
    'hotellerie': 'tourisme',
}

# Sector key -> synonyms that signal a candidate targets that sector
SECTOR_SYNONYMS: Dict[str, List[str]] = {
    'agriculture': [
        'agricole', 'agriculteur', 'exploitation agricole', 'culture', 'elevage', 'ferme',
        'agroalimentaire', 'pac', 'foncier agricole', 'semences', 'recolte', 'biomasse',
        'biosource', 'carbone', 'decarbonation', 'environnement', 'durable', 'plantation',
        'hectare', 'filiere agricole', 'feader', 'rural', 'fermier', 'paysan', 'maraicher',
        'viticulture', 'arboriculture',
    ],
    'sylviculture': ['forestier', 'foret', 'bois', 'filiere bois', 'exploitation forestiere'],
    'peche': ['pecheur', 'aquaculture', 'maritime', 'conchyliculture', 'ostreiculture', 'feamp'],
    'agroalimentaire': ['alimentaire', 'transformation alimentaire', 'iaa', 'agro-industrie'],
    'textile': ['habillement', 'confection', 'couture', 'tissu', 'vetement'],
    'bois': ['menuiserie', 'charpente', 'ebenisterie', 'biosource', 'filiere bois', 'scierie'],
    'papier': ['carton', 'emballage', 'imprimerie'],
    'chimie': ['chimique', 'petrochimie', 'produits chimiques'],
    'pharmacie': ['pharmaceutique', 'medicament', 'biotech', 'biotechnologie'],
    'plasturgie': ['plastique', 'caoutchouc', 'polymere', 'composite'],
    'materiaux': ['verre', 'ceramique', 'beton', 'ciment', 'materiaux de construction'],
    'metallurgie': ['metal', 'siderurgie', 'fonderie', 'forge', 'usinage', 'chaudronnerie'],
    'electronique': ['electrique', 'composant', 'semi-conducteur', 'microelectronique', 'capteur'],
    'mecanique': ['machine', 'outillage', 'robotique', 'automatisation'],
    'automobile': ['vehicule', 'equipementier', 'mobilite'],
    'aeronautique': ['aerospatial', 'aviation', 'spatial', 'defense', 'naval'],
    'ameublement': ['meuble', 'mobilier', 'agencement'],
    'industrie': [
        'industriel', 'manufacture', 'production', 'usine', 'fabrication', 'transformation',
        'production industrielle', 'atelier',
    ],
    'construction': [
        'batiment', 'btp', 'travaux', 'immobilier', 'renovation', 'travaux publics',
        'chantier', 'genie civil',
    ],
    'commerce': ['commercial', 'vente', 'distribution', 'retail', 'magasin', 'boutique', 'negoce'],
    'transport': ['logistique', 'mobilite', 'vehicule', 'livraison', 'fret', 'routier', 'ferroviaire'],
    'logistique': ['entreposage', 'supply chain', 'stockage', 'manutention'],
    'tourisme': ['hotel', 'restauration', 'voyage', 'loisir', 'hebergement', 'touristique', 'camping'],
    'restauration': ['restaurant', 'traiteur', 'cafe', 'hotellerie-restauration'],
    'numerique': [
        'digital', 'tech', 'informatique', 'logiciel', 'ia', 'data', 'saas', 'cloud',
        'intelligence artificielle',
    ],
    'telecommunications': ['telecom', 'reseau', 'fibre', '5g'],
    'edition': ['editeur', 'livre', 'presse', 'media'],
    'audiovisuel': ['cinema', 'film', 'production audiovisuelle', 'musique', 'jeux video', 'animation'],
    'finance': ['financier', 'banque', 'bancaire', 'fintech'],
    'assurance': ['assureur', 'mutuelle', 'prevoyance', 'insurtech'],
    'immobilier': ['foncier', 'gestion immobiliere', 'proptech'],
    'services': ['prestation', 'conseil', 'service', 'consulting'],
    'conseil': ['consulting', 'consultant', 'expertise', 'accompagnement', 'audit'],
    'ingenierie': ["bureau d'etudes", 'conception', 'architecture'],
    'design': ['creation', 'graphisme', 'stylisme', 'designer'],
    'communication': ['publicite', 'marketing', 'evenementiel'],
    'rh': ['ressources humaines', 'recrutement', 'formation professionnelle', 'interim'],
    'sante': ['medical', 'soin', 'hopital', 'pharma', 'biotech', 'medecine', 'clinique', 'veterinaire'],
    'social': ['medico-social', 'aide a domicile', 'handicap', 'insertion', 'ess'],
    'culture': ['culturel', 'artistique', 'patrimoine', 'musee', 'spectacle vivant'],
    'sport': ['sportif', 'equipement sportif', 'club', 'federation'],
    'environnement': ['ecologie', 'dechet', 'recyclage', 'economie circulaire', 'biodiversite'],
    'energie': [
        'energetique', 'renouvelable', 'electricite', 'photovoltaique', 'eolien',
        'hydrogene', 'decarbonation',
    ],
    'r&d': ['recherche', 'developpement', 'innovation', 'laboratoire', 'brevet', 'experimentation'],
    'formation': ['enseignement', 'education', 'apprentissage', 'competences', 'ecole'],
    'associatif': ['association', 'ong', 'fondation', 'benevole'],
    'securite': ['surveillance', 'gardiennage', 'protection'],
}

# Sector key -> terms that mark a candidate as irrelevant for that sector
SECTOR_EXCLUSIONS: Dict[str, List[str]] = {
    'agriculture': [
        'automobile', 'amiante', 'garage', 'carrosserie', 'mecanique auto', 'taxi', 'vtc',
        'musique', 'cinema', 'audiovisuel', 'spectacle', 'theatre', 'jeux video',
    ],
    'sylviculture': ['musique', 'cinema', 'audiovisuel', 'spectacle', 'theatre'],
    'peche': ['musique', 'cinema', 'audiovisuel', 'spectacle', 'theatre', 'agricole terrestre'],
    'industrie': ['musique', 'spectacle', 'theatre', 'danse'],
    'agroalimentaire': ['musique', 'cinema', 'spectacle', 'logiciel'],
    'textile': ['musique', 'cinema'],
    'bois': ['musique', 'cinema', 'spectacle'],
    'chimie': ['musique', 'cinema', 'spectacle'],
    'pharmacie': ['musique', 'cinema', 'spectacle'],
    'metallurgie': ['musique', 'cinema', 'spectacle'],
    'electronique': ['musique', 'spectacle', 'theatre', 'elevage'],
    'automobile': ['musique', 'cinema', 'spectacle'],
    'aeronautique': ['musique', 'cinema', 'spectacle'],
    'construction': ['musique', 'cinema', 'film', 'spectacle'],
    'commerce': ['musique', 'cinema', 'film', 'spectacle'],
    'transport': ['musique', 'cinema', 'spectacle'],
    'logistique': ['musique', 'cinema', 'spectacle'],
    'tourisme': ['industrie lourde', 'metallurgie', 'chimie'],
    'restauration': ['industrie lourde', 'metallurgie', 'chimie'],
    'numerique': ['elevage', 'peche', 'sylviculture', 'spectacle vivant'],
    'telecommunications': ['elevage', 'spectacle', 'cinema'],
    'finance': ['musique', 'cinema', 'spectacle', 'artisanat'],
    'assurance': ['musique', 'cinema', 'spectacle'],
    'immobilier': ['musique', 'cinema', 'spectacle'],
    'conseil': ['musique', 'cinema', 'spectacle'],
    'sante': ['musique', 'cinema', 'spectacle', 'industrie lourde'],
    'social': ['manufacture', 'metallurgie'],
    'environnement': ['spectacle', 'cinema', 'musique'],
    'energie': ['spectacle', 'cinema', 'musique'],
}

# Size category -> wording that targets a conflicting company size
SIZE_EXCLUSIONS: Dict[str, List[str]] = {
    'TPE': ['grandes entreprises uniquement', 'reserve aux eti', 'grands groupes'],
    'PME': ['grandes entreprises uniquement', 'grands groupes'],
    'ETI': ['startup', 'jeune entreprise', 'tpe uniquement', 'reserve aux tpe', 'micro-entreprise',
            'auto-entrepreneur'],
    'GE': ['startup', 'jeune entreprise', 'tpe uniquement', 'reserve aux tpe', 'pme uniquement',
           'reserve aux pme', 'micro-entreprise', 'auto-entrepreneur'],
}

# Companies older than this no longer qualify as "young"
YOUNG_COMPANY_MAX_AGE = 8
YOUNG_COMPANY_EXCLUSIONS = ['jeune entreprise', 'jeune pousse', 'moins de 3 ans', 'creation recente']

STOP_WORDS = {
    'pour', 'avec', 'dans', 'sans', 'autre', 'autres', 'plus', 'moins', 'tres', 'etre',
    'avoir', 'faire', 'tout', 'tous', 'leurs', 'cette', 'notre', 'votre', 'entreprise',
    'societe', 'activite', 'activites', 'compris',
}

# Certification fragment -> extra search terms
CERTIFICATION_EXPANSIONS: Dict[str, List[str]] = {
    'bio': ['bio', 'biologique', 'agriculture biologique'],
    'hve': ['hve', 'haute valeur environnementale'],
    'rge': ['rge', 'reconnu garant environnement', 'renovation energetique'],
    'iso 14001': ['environnement', 'management environnemental'],
}

# Declared project-type tag -> candidate keywords
PROJECT_TYPE_KEYWORDS: Dict[str, List[str]] = {
    'innovation': ['innovation', 'r&d', 'recherche', 'developpement', 'innov'],
    'export': ['export', 'international', 'etranger', 'commerce exterieur'],
    'transition-eco': ['ecologique', 'environnement', 'durable', 'vert', 'carbone', 'energie'],
    'numerique': ['numerique', 'digital', 'tech', 'informatique', 'cyber'],
    'emploi': ['emploi', 'formation', 'recrutement', 'competences', 'apprentissage'],
    'creation': ['creation', 'reprise', 'startup', 'entrepreneur', 'jeune entreprise'],
    'investissement': ['investissement', 'equipement', 'materiel', 'immobilier'],
    'tresorerie': ['tresorerie', 'bfr', 'financement', 'pret'],
}

# Legal forms that make the profile a non-profit entity
ASSOCIATION_LEGAL_FORMS = ['association', 'asso', 'loi 1901', 'fondation', 'fonds de dotation', 'coop']

# Legal form -> entity types a program's eligible-entity list may name (folded)
LEGAL_FORM_ENTITY_TYPES: Dict[str, List[str]] = {
    'sa': ['entreprise', 'pme', 'eti', 'ge', 'societe', 'societe commerciale'],
    'sas': ['entreprise', 'pme', 'eti', 'startup', 'societe', 'societe commerciale'],
    'sasu': ['entreprise', 'pme', 'tpe', 'startup', 'societe', 'societe commerciale'],
    'sarl': ['entreprise', 'pme', 'tpe', 'societe', 'societe commerciale'],
    'eurl': ['entreprise', 'tpe', 'societe', 'societe commerciale'],
    'sarlu': ['entreprise', 'tpe', 'societe', 'societe commerciale'],
    'snc': ['entreprise', 'pme', 'tpe', 'societe', 'societe de personnes'],
    'scs': ['entreprise', 'pme', 'societe', 'societe de personnes'],
    'sca': ['entreprise', 'pme', 'eti', 'societe', 'societe de personnes'],
    'ei': ['entreprise', 'tpe', 'independant', 'entrepreneur individuel'],
    'eirl': ['entreprise', 'tpe', 'independant', 'entrepreneur individuel'],
    'auto-entrepreneur': ['entreprise', 'tpe', 'independant', 'micro-entreprise', 'travailleur independant'],
    'micro-entreprise': ['entreprise', 'tpe', 'independant', 'micro-entreprise', 'travailleur independant'],
    'profession liberale': ['entreprise', 'tpe', 'independant', 'profession liberale', 'travailleur independant'],
    'artisan': ['entreprise', 'tpe', 'artisan', 'independant', "metiers d'art"],
    'commercant': ['entreprise', 'tpe', 'commercant', 'commerce'],
    'sci': ['societe civile', 'societe civile immobiliere', 'immobilier'],
    'scm': ['societe civile', 'societe civile de moyens', 'profession liberale'],
    'scp': ['societe civile', 'societe civile professionnelle', 'profession liberale'],
    'sel': ['societe', "societe d'exercice liberal", 'profession liberale'],
    'selarl': ['societe', "societe d'exercice liberal", 'profession liberale'],
    'gaec': ['entreprise agricole', 'exploitation agricole', 'agriculture', 'groupement agricole'],
    'earl': ['entreprise agricole', 'exploitation agricole', 'agriculture', 'tpe', 'pme'],
    'scea': ['entreprise agricole', 'exploitation agricole', 'agriculture', 'societe civile'],
    'exploitant agricole': ['entreprise agricole', 'exploitation agricole', 'agriculture', 'tpe', 'independant'],
    'scop': ['entreprise', 'cooperative', 'ess', 'pme', 'economie sociale et solidaire'],
    'scic': ['entreprise', 'cooperative', 'ess', 'economie sociale et solidaire', 'interet collectif'],
    'cooperative agricole': ['cooperative', 'agriculture', 'ess', 'cooperative agricole'],
    'cooperative': ['cooperative', 'ess', 'economie sociale et solidaire'],
    'cae': ['cooperative', "cooperative d'activite et d'emploi", 'ess', 'entrepreneur salarie'],
    'association': ['association', 'organisme a but non lucratif', 'obnl', 'ess'],
    'fondation': ['fondation', 'organisme a but non lucratif', 'obnl', 'mecenat'],
    'fonds de dotation': ['fondation', 'organisme a but non lucratif', 'obnl', 'mecenat'],
    'mutuelle': ['mutuelle', 'ess', 'organisme complementaire', 'economie sociale et solidaire'],
    'epic': ['etablissement public', 'organisme public', 'epic'],
    'epa': ['etablissement public', 'organisme public', 'epa'],
    'sem': ["societe d'economie mixte", 'organisme public', 'collectivite'],
    'spl': ['societe publique locale', 'organisme public', 'collectivite'],
    'gip': ["groupement d'interet public", 'organisme public'],
    'regie': ['organisme public', 'collectivite', 'regie'],
    'gie': ['groupement', 'gie', "groupement d'interet economique", 'entreprise'],
    'geie': ['groupement', 'geie', "groupement europeen d'interet economique"],
    'societe europeenne': ['entreprise', 'societe europeenne', 'pme', 'eti', 'ge'],
    'succursale': ['entreprise', 'succursale', 'filiale'],
}
DEFAULT_ENTITY_TYPES = ['entreprise', 'pme', 'tpe']
UNKNOWN_FORM_ENTITY_TYPES = ['entreprise']

# Eligible-entity wording open to any company
GENERIC_ENTITY_TERMS = {'entreprise', 'societe', 'tous', 'toutes entreprises'}

MAX_SEARCH_TERMS = 25
